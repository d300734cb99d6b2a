"""Admin user provisioning service.

To use the Flask app:
    from useradmin.flask_app import create_app

To use the provisioning workflow directly:
    from useradmin.core.provisioning_service import ProvisioningService
"""
# Note: flask_app is not imported here so that the core can be used
# without building an application
