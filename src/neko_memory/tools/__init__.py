"""Tool callables exposing the memory store to an agent."""
