"""Backend API adapters (GraphQL over HTTP)."""
