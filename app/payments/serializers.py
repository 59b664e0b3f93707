"""
DRF serializers for payments app.

Usage:
    charge = checkout.pay_order(order, caller=request.user)
    return Response(ChargeSerializer(charge).data)
"""

from __future__ import annotations

from rest_framework import serializers


class ChargeSerializer(serializers.Serializer):
    """
    Checkout response.

    Fields:
        reference: Client reference the gateway will report back
        checkout_url: Where the payer completes the payment
    """

    reference = serializers.CharField(read_only=True)
    checkout_url = serializers.CharField(source="url", read_only=True)
