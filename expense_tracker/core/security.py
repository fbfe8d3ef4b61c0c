import hashlib
import bcrypt

# bcrypt only reads the first 72 bytes, so hash a fixed-size digest instead
def _digest(password: str) -> bytes:
    return hashlib.sha256(password.encode("utf-8")).digest()

def hash_password(password: str) -> str:
    return bcrypt.hashpw(_digest(password), bcrypt.gensalt()).decode()

def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_digest(password), hashed_password.encode())
