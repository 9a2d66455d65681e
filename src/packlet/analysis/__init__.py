"""Static analysis of parsed modules and the module graph."""
