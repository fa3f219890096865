"""Webhook delivery endpoint.

Usage
-----
Import the resource for route registration::

    from warden.api.webhooks.resources import WebhookResource
"""
