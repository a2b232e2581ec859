"""Entity store: repository protocols and their Supabase / in-memory backends."""
