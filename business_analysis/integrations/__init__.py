"""Clients for the external APIs the analysis collaborators depend on."""
