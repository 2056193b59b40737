"""Task/correspondence visibility."""
