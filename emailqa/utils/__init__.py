"""Small, dependency-free helpers shared by the analyzers."""
