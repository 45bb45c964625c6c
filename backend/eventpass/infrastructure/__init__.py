"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .razorpay_client import RazorpayGateway, get_payment_gateway

__all__ = ['RazorpayGateway', 'get_payment_gateway']
