from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "slug",
                    models.SlugField(help_text="Subdomain label, e.g. 'bunga-mawar'", max_length=48, unique=True),
                ),
                (
                    "stytch_org_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stytch organization_id, e.g. 'organization-xxx'",
                        max_length=255,
                    ),
                ),
                ("onboarding_completed", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("courier_connected", models.BooleanField(default=False)),
                ("courier_configured_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
