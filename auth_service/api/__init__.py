"""HTTP surface: routes, request models and error mapping."""
