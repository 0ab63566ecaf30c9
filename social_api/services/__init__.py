# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single aggregate:
#
#   user_service     - CRUD + uniqueness conflicts for User
#   post_service     - CRUD, filters, feed and cache for Post
#   comment_service  - comments and one-level replies
#   like_service     - like / unlike / toggle and batch lookups
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as the exceptions in
# ``social_api.exceptions``.
