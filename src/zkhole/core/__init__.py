"""Domain clients and the operation pipeline they share."""
