from django.contrib.auth.base_user import BaseUserManager


class CustomUserManager(BaseUserManager):
    """
    User manager where the utorid is the unique login identifier.
    """

    use_in_migrations = True

    def create_user(self, utorid, email=None, password=None, **extra_fields):
        """
        Users created without a password cannot log in until they activate
        their account through a reset token.
        """
        if not utorid:
            raise ValueError("The utorid must be set")
        email = self.normalize_email(email) if email else email
        user = self.model(utorid=utorid, email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, utorid, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", self.model.SUPERUSER)
        extra_fields.setdefault("verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(utorid, email, password, **extra_fields)
