"""
The `api` package defines the backend's HTTP and WebSocket interface,
along with supporting utilities and data models.

It integrates FastAPI routing, bearer-token authentication and the
realtime broadcaster. The package keeps request/response validation in
Pydantic schemas and maps service errors onto a single JSON envelope.

Contents
--------
- fast_api
    Defines the FastAPI router with endpoints for:
        * Registration, login, token refresh, logout, password reset/change
        * Conversation find-or-create and listing
        * Sending messages, paginated history, mark read, leaving
        * Account administration (list, status changes, deletion)

- realtime
    The `/ws` endpoint: token handshake, room join/leave, live messages
    and typing indicators

- broadcaster
    `RealtimeBroadcaster`, the connection and room registry that fans
    events out to conversation participants

- models
    Pydantic schemas for request/response validation (camelCase on the wire)

- responses
    The `{success, message, data}` envelope and its paginated variant

- errors
    Exception handlers for the error taxonomy and request validation

- utils
    Dependencies:
        * `get_current_user` : resolves the bearer token to an ACTIVE user
        * `require_roles` : restricts a route to the given roles
"""
