"""Business logic service layer."""
