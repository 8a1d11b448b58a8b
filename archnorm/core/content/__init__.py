"""Rich-content resolution: run trees, embedded links and inline markup."""
