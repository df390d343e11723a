"""
Restaurant catalogue.

Responsibilities:
- Seed the catalogue from the bundled CSV on first use.
- Create, update and soft-delete restaurants.
- Serve the active restaurant list to the draw, tournament and poll flows.
"""
