import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import users.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("email", models.EmailField(help_text="Login identifier (stored lower-case).", max_length=100, unique=True)),
                ("nickname", models.CharField(blank=True, default="", help_text="Display name.", max_length=255)),
                ("score", models.IntegerField(default=0, help_text="Score balance (sign-in rewards minus storage charges).")),
                ("verified", models.BooleanField(default=False, help_text="Email address confirmed?")),
                ("verification_token", models.CharField(blank=True, default="", max_length=64)),
                ("last_sign_at", models.DateTimeField(blank=True, help_text="Last daily sign-in.", null=True)),
                ("password_changed_at", models.DateTimeField(blank=True, null=True)),
                ("session_version", models.PositiveIntegerField(default=0, help_text="Embedded in issued tokens; bumping it logs the user out everywhere.")),
                ("is_active", models.BooleanField(default=True)),
                ("is_staff", models.BooleanField(default=False, help_text="Can log into the admin site.")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "User",
                "verbose_name_plural": "Users",
                "ordering": ["id"],
            },
            managers=[
                ("objects", users.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Texture",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="Texture name shown in the library.", max_length=50)),
                ("type", models.CharField(choices=[("steve", "Skin (Steve model)"), ("alex", "Skin (Alex model)"), ("cape", "Cape")], db_index=True, default="steve", max_length=10)),
                ("hash", models.CharField(blank=True, db_index=True, default="", help_text="sha256 of the file.", max_length=64)),
                ("size", models.PositiveIntegerField(default=0, help_text="File size in KB.")),
                ("public", models.BooleanField(default=True, help_text="Visible to every user?")),
                ("file", models.FileField(blank=True, upload_to="textures/", validators=[django.core.validators.FileExtensionValidator(allowed_extensions=["png"]), users.models.validate_texture_size])),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                ("uploader", models.ForeignKey(blank=True, help_text="User who uploaded (and pays storage for) this texture.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="textures", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Texture",
                "verbose_name_plural": "Textures",
                "ordering": ["-uploaded_at"],
            },
        ),
        migrations.AddField(
            model_name="user",
            name="avatar",
            field=models.ForeignKey(blank=True, help_text="Skin texture used as avatar (never a cape).", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="users.texture"),
        ),
    ]
