"""Web framework adapters exposing the remote-storage endpoints."""
