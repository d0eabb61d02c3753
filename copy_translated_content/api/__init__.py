"""HTTP helpers shared by the blueprints."""
