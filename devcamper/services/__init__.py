# Services package init
"""
DevCamper API — Services Layer
===============================

Service Inventory:
    - QueryResolver: filter / select / sort / paginate / populate for list endpoints
    - GeocoderService: address → coordinates (MapQuest-style HTTP API), retried
      with tenacity and guarded by a circuit breaker
    - FileService: bootcamp photo validation and storage
    - EmailService: SMTP delivery of password-reset mail
    - AuthService / UserService: accounts, credentials, reset tokens
    - BootcampService / CourseService / ReviewService: resources and the
      average_cost / average_rating aggregates

Services raise DevCamperError subclasses; routes never build error responses.
"""
