"""Domain Layer: models, interfaces (ports), events and errors."""
