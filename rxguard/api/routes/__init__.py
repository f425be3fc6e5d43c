"""Route Modules — one APIRouter per concern (health, rxguard)."""
