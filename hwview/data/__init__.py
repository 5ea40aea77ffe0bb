"""Built-in name-mapping tables shipped with hwview."""
