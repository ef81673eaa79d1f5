"""Core game-state engine: ships, boards, players and matches."""
