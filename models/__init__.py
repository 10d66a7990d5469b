from models.db_storage import DBStorage

# Unconfigured until the app factory calls storage.configure(...)
storage = DBStorage()
