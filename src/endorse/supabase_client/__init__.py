from .supabase_service import SupabaseCatalogService, get_supabase_service

__all__ = ["SupabaseCatalogService", "get_supabase_service"]
