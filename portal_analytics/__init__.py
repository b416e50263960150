"""Analytics aggregation engine for the academic portal's quiz and form reports."""
