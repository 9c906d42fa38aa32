"""Services: mapping construction, aggregation, the import session and its projection."""
