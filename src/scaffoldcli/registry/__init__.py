"""Project registry — Project records and the JSON-backed RegistryStore."""
