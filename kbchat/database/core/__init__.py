"""
Core functions that connect the API routers with the database.

- funcs: transactional service operations (CRUD, feedback counters, hit
  recording, ranked retrieval) and `EntryNotFoundError`.
"""
