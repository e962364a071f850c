from database import engine, Base, SessionLocal
from main import seed_admin

def init_database():
    if engine is None:
        print("DATABASE_URL is not set, nothing to initialize")
        return

    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")

    db = SessionLocal()
    try:
        admin = seed_admin(db)
        print(f"Admin account: {admin.email}")
    finally:
        db.close()

if __name__ == "__main__":
    init_database()
