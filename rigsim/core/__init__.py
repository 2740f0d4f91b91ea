"""Core data model: terminals, connections, faults and session state."""
