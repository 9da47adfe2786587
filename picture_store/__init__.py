"""Picture store: binary picture storage with a metadata index."""
