"""Solo RPG notation: parse shorthand session logs into a queryable campaign index."""
