"""Core building blocks shared by the plugin manager."""
