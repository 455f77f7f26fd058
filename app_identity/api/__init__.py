"""HTTP layer: blueprints, session glue and error handlers."""
