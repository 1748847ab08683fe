"""
Read-only access to the marketplace data the chat depends on.

The marketplace (campaigns, applications, payments, profiles) is owned by
another service. This app maps its tables with unmanaged models and exposes
them through the chat's collaborator interfaces:

    marketplace.directory.DatabaseEngagementDirectory  -> EngagementDirectory
    marketplace.ledger.DatabasePaymentLedger           -> PaymentLedger
"""
