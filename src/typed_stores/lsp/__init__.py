"""Language server for the schema declaration DSL."""
