"""Configuration, paths and theming for dirtygit."""
