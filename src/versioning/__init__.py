"""Version parsing, matching and resolution."""
