"""Ordered setup pipeline: admin token, realm, client, test user.

Each step is a function ``(client, config) -> StepResult``. The sequencer
runs them in order and stops at the first FAILED result; ALREADY_EXISTS
counts as success.
"""
from __future__ import annotations
from typing import Callable, Optional

from oidc_setup.config.settings import SetupConfig

from .keycloak import (
    DiscoveryService,
    KeycloakAPIError,
    KeycloakClient,
    KeycloakTransportError,
    MalformedResponseError,
    RealmService,
    UserService,
)
from .results import FailureKind, SetupReport, StepResult

Step = Callable[[KeycloakClient, SetupConfig], StepResult]


def obtain_admin_token(client: KeycloakClient, config: SetupConfig) -> StepResult:
    print("[setup] Getting admin token...")
    try:
        token = client.authenticate_admin(
            config.admin_username,
            config.admin_password,
            realm=config.admin_realm,
            client_id=config.admin_client_id,
        )
    except KeycloakTransportError as exc:
        return StepResult.failed("token", FailureKind.TRANSPORT, exc.message)
    except KeycloakAPIError as exc:
        return StepResult.failed("token", FailureKind.HTTP, exc.message, status_code=exc.status_code)
    except MalformedResponseError as exc:
        return StepResult.failed("token", FailureKind.MALFORMED, str(exc))
    print("[setup] Admin token obtained")
    return StepResult.created("token", "admin token obtained", status_code=200, value=token)


def ensure_realm(client: KeycloakClient, config: SetupConfig) -> StepResult:
    print(f"[setup] Creating realm '{config.realm_name}'...")
    return RealmService(client).create_realm(config.realm_name, config.realm_display_name)


def ensure_client(client: KeycloakClient, config: SetupConfig) -> StepResult:
    print(f"[setup] Creating OAuth2 client '{config.client_id}'...")
    return RealmService(client).create_client(
        config.realm_name,
        config.client_id,
        config.client_secret,
        config.redirect_uris,
        config.web_origins or None,
    )


def ensure_test_user(client: KeycloakClient, config: SetupConfig) -> StepResult:
    if not config.create_test_user:
        print("[setup] Skipping test user")
        return StepResult.skipped("user", "test user creation disabled")
    print(f"[setup] Creating test user '{config.test_username}'...")
    return UserService(client).create_user(
        config.realm_name,
        config.test_username,
        config.test_password,
        config.test_email,
        config.test_first_name,
        config.test_last_name,
    )


SETUP_STEPS: tuple[Step, ...] = (obtain_admin_token, ensure_realm, ensure_client, ensure_test_user)


class SetupSequencer:
    """Runs the setup steps in strict order against one Keycloak instance."""

    def __init__(
        self,
        config: SetupConfig,
        client: Optional[KeycloakClient] = None,
        steps: tuple[Step, ...] = SETUP_STEPS,
    ):
        self.config = config
        self.client = client or KeycloakClient(
            config.admin_base,
            timeout=config.request_timeout,
            verify=config.verify_ssl,
        )
        self.steps = steps

    def __enter__(self) -> "SetupSequencer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.client.close()

    def run(self) -> SetupReport:
        """Execute every step until one fails.

        Returns:
            SetupReport holding one result per executed step. Steps after a
            failure are not executed and have no result.
        """
        report = SetupReport()
        for step in self.steps:
            result = step(self.client, self.config)
            report.add(result)
            if not result.ok:
                break
        return report

    def verify(self) -> SetupReport:
        """Check the configured realm from a relying party's point of view.

        Fetches the discovery document and logs the test user in through
        the configured client. Needs no admin token.
        """
        report = SetupReport()
        discovery = DiscoveryService(self.client)

        print(f"[verify] Fetching discovery document for {self.config.issuer_url}...")
        result = discovery.fetch_discovery(self.config.issuer_url)
        report.add(result)
        if not result.ok:
            return report
        print(f"[verify] OK discovery ({result.detail})")

        print(f"[verify] Logging in as '{self.config.test_username}'...")
        result = discovery.verify_login(
            result.value["token_endpoint"],
            self.config.client_id,
            self.config.client_secret,
            self.config.test_username,
            self.config.test_password,
        )
        report.add(result)
        if result.ok:
            print(f"[verify] OK login ({result.detail})")
        return report
