# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic for a single concern:
#
#   auth_service: registration, login, session tokens
#   authorization: ownership checks (pure, no I/O)
#   content_service: create/update/delete/list for Post and Project
#   user_service: public profile reads and name updates
#   assets: cover-image storage on S3
#   mailer: contact-form delivery over SMTP
#
# Functions that touch the database accept an AsyncSession as their first
# argument so that the router layer controls the transaction boundary via
# the ``get_db`` dependency.
