from models.db_storage import DBStorage

# Process-wide storage; create_app() binds it to DATABASE_URL via reload()
storage = DBStorage()
