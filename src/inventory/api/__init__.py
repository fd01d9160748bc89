from inventory.api.routes import alert_router, inventory_router, location_router

__all__ = ["inventory_router", "location_router", "alert_router"]
