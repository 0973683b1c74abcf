"""Entity authorization core for the operations platform."""
