"""DiceCloud v2 creature payload extraction."""
