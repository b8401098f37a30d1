"""HR Portal package.

Feature modules (profiles, provisioning, identity) each expose a service layer
over repository interfaces, plus a thin Flask controller layer.
"""
