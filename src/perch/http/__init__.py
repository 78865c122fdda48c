"""HTTP collaborators — Request, Response, and the per-request Responder."""
