"""Core library: generation workflow, transport, storage and licensing."""
