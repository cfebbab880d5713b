"""URL-level value types shared by the router and navigation context."""
