"""Supabase database connection and configuration."""

from supabase import create_client, Client
from app.config.settings import get_settings
from app.exceptions import ConfigurationError

# Global Supabase client
_supabase_client = None

def get_supabase_client() -> Client:
    """Get Supabase client instance."""
    global _supabase_client
    
    if _supabase_client is None:
        settings = get_settings()
        supabase_url = settings.supabase_url
        supabase_key = settings.supabase_key
        
        if not supabase_url or not supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set in .env file")
        
        # Add https:// if missing
        if not supabase_url.startswith(("http://", "https://")):
            supabase_url = f"https://{supabase_url}"
        
        _supabase_client = create_client(supabase_url, supabase_key)
    
    return _supabase_client
