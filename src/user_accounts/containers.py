"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from user_accounts.adapters.supabase_photo_storage import SupabasePhotoStorage
from user_accounts.adapters.supabase_user_repository import SupabaseUserRepository
from user_accounts.config import Settings
from user_accounts.services.passwords import PasswordHasher
from user_accounts.services.users import UserLifecycle


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_lifecycle: UserLifecycle


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(
        supabase_client, table_name=resolved_settings.users_table
    )
    photo_storage = SupabasePhotoStorage(
        supabase_client, bucket=resolved_settings.photo_bucket
    )
    user_lifecycle = UserLifecycle(
        records=user_repository,
        photos=photo_storage,
        hasher=PasswordHasher(rounds=resolved_settings.password_hash_rounds),
        photo_folder=resolved_settings.photo_folder,
        max_page_size=resolved_settings.max_page_size,
    )
    return AppContainer(settings=resolved_settings, user_lifecycle=user_lifecycle)
