"""Service layer.

Subpackages
-----------
- ``auth``: :class:`~bearchat.services.auth.service.SessionIssuer`
  (signup, signin, refresh, logout).
- ``identity``: :class:`~bearchat.services.identity.service.SessionValidator`
  (stateless token check used by every service).
- ``verification``: :class:`~bearchat.services.verification.service.VerificationFlow`.
- ``password_reset``: :class:`~bearchat.services.password_reset.service.ResetFlow`.
- ``_shared``: base service, errors, ports and policies.

Nothing is re-exported here: ``bearchat.core.extensions`` imports from this
package while the models still depend on it.
"""
