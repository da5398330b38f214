# Services package.
#
# Each module exposes async functions for one aggregate:
#
#   diary_service    — owner-scoped CRUD for Diary
#   article_service  — CRUD + cache for Article
#   user_service     — sign-up and credential checks for User
#
# Every function takes an AsyncSession first.  Services flush but never
# commit; the ``get_db`` dependency owns the transaction boundary.
