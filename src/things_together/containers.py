"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from things_together.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from things_together.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from things_together.adapters.supabase_thing_repository import SupabaseThingRepository
from things_together.config import Settings
from things_together.services.client_sessions import ClientScope, ClientSessionRegistry
from things_together.services.controllers import build_screen_controllers
from things_together.services.invalidation import InvalidationBus
from things_together.services.profiles import ProfileService
from things_together.services.session import IdentityProvider, SessionContext
from things_together.services.things import ThingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies.

    ``profile_service`` serves the admin endpoints. Screens and actions use
    the services of the calling browser's scope in ``client_sessions``.
    """

    settings: Settings
    profile_service: ProfileService
    invalidation_bus: InvalidationBus
    client_sessions: ClientSessionRegistry


def build_client_scope(
    settings: Settings,
    identity_provider: IdentityProvider,
    thing_service: ThingService,
    profile_service: ProfileService,
    invalidation_bus: InvalidationBus,
) -> ClientScope:
    """Wire a session and its screens for one browser."""
    session = SessionContext(
        identity_provider,
        profile_service,
        default_partner_name=settings.default_partner_name,
    )
    controllers = build_screen_controllers(
        session, thing_service, invalidation_bus, identity_provider
    )
    return ClientScope(
        identity_provider=identity_provider, session=session, controllers=controllers
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    invalidation_bus = InvalidationBus()
    admin_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key or resolved_settings.supabase_anon_key,
    )

    def new_client_scope() -> ClientScope:
        # Auth state lives on the client, so every browser gets its own.
        client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_anon_key
        )
        return build_client_scope(
            resolved_settings,
            SupabaseIdentityProvider(client),
            ThingService(
                SupabaseThingRepository(client),
                preserve_first_done_at=resolved_settings.preserve_first_done_at,
            ),
            ProfileService(SupabaseProfileRepository(client)),
            invalidation_bus,
        )

    return AppContainer(
        settings=resolved_settings,
        profile_service=ProfileService(SupabaseProfileRepository(admin_client)),
        invalidation_bus=invalidation_bus,
        client_sessions=ClientSessionRegistry(new_client_scope),
    )
