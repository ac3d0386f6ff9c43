"""
Admin Panel Models
Admin accounts and the audit log
"""

from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from models import get_db_connection


class AdminUser:
    """Admin user model for admin panel authentication"""

    def __init__(self, id=None, email=None, password_hash=None, full_name=None,
                 role='admin', is_active=True, last_login_at=None,
                 created_at=None, updated_at=None):
        self.id = id
        self.email = email
        self.password_hash = password_hash
        self.full_name = full_name
        self.role = role
        self.is_active = is_active
        self.last_login_at = last_login_at
        self.created_at = created_at
        self.updated_at = updated_at

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def save(self):
        """Insert or update admin user in database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            if self.id:
                cursor.execute("""
                    UPDATE admin_users SET
                        email = %s, password_hash = %s, full_name = %s,
                        role = %s, is_active = %s, last_login_at = %s
                    WHERE id = %s
                """, (self.email, self.password_hash, self.full_name,
                      self.role, self.is_active, self.last_login_at, self.id))
            else:
                cursor.execute("""
                    INSERT INTO admin_users (email, password_hash, full_name, role, is_active)
                    VALUES (%s, %s, %s, %s, %s)
                """, (self.email, self.password_hash, self.full_name, self.role, self.is_active))
                self.id = cursor.lastrowid

            conn.commit()
            return self.id
        finally:
            cursor.close()
            conn.close()

    def update_last_login(self):
        """Update last login timestamp"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "UPDATE admin_users SET last_login_at = NOW() WHERE id = %s",
                (self.id,)
            )
            conn.commit()
            self.last_login_at = datetime.now()
        finally:
            cursor.close()
            conn.close()

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'last_login_at': self.last_login_at.isoformat() if self.last_login_at else None
        }

    @staticmethod
    def get_by_email(email):
        """Get admin user by email"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM admin_users WHERE email = %s", (email,))
            row = cursor.fetchone()
            return AdminUser(**row) if row else None
        finally:
            cursor.close()
            conn.close()


def log_admin_action(admin_id, action, entity_type=None, entity_id=None, details=None, ip_address=None):
    """Log admin action to audit_log table"""
    conn = get_db_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("""
            INSERT INTO audit_log
            (admin_user_id, action, entity_type, entity_id, details, ip_address, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW())
        """, (admin_id, action, entity_type, entity_id, details, ip_address))
        conn.commit()
    finally:
        cursor.close()
        conn.close()
