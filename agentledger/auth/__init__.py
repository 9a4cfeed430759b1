"""Session authentication: JWT cookies, bcrypt passwords."""
