"""Record (de)serialization."""
