"""Configuration loading: .wpenv.yml, the .env.local overlay and validation."""
