"""
buildfleet.integrations - Pluggable Backends
==============================================

    runner      how a module's BUILD / CLEAN is carried out
    repository  how a publication reaches a remote repository
    coverage    how the combined coverage report is produced
"""
