"""
                Food Delivery Order Service

Backend for a food-delivery marketplace: menu lookup, order placement,
order pricing and the order status lifecycle, with live order events
pushed to an external broadcast channel.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
