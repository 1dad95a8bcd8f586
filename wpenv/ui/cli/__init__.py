"""Click sub-commands registered by wpenv.main."""
