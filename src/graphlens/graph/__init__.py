"""Graph model and analytics: coupling, relationships, flows, impact."""
