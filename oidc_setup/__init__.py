"""Keycloak OAuth/OIDC setup package.

To run the setup pipeline:
    from oidc_setup.config import load_settings
    from oidc_setup.core.sequencer import SetupSequencer

    report = SetupSequencer(load_settings()).run()

To use Keycloak services directly:
    from oidc_setup.core.keycloak import KeycloakClient, RealmService, UserService
"""
