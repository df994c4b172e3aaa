"""
Services layer - intake, verification and maintenance logic.

Routes stay thin: they resolve the caller and client source, then delegate
to one of the services below, which raise app.services.errors types.

- report_service: intake gates and create-or-merge at the address key
- verification_service: verify / deny / delete of pending reports
- maintenance_service: aging, stats recalculation, purge, consolidation
"""
