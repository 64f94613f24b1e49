"""Password hashing, session tokens, the authentication gate and throttling."""
