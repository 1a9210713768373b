from django.core.management.base import BaseCommand

from assessment.models import Project, parse_legacy_savings


class Command(BaseCommand):
    help = "Copy 'Actual Annual Savings: $X[K|M]' notes from project descriptions into actual_annual_savings."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Report what would change without saving")

    def handle(self, *args, **options):
        updated = 0
        for project in Project.objects.filter(actual_annual_savings__isnull=True).iterator():
            savings = parse_legacy_savings(project.description)
            if savings is None:
                continue
            self.stdout.write(f"{project.title}: {savings}")
            if not options["dry_run"]:
                project.actual_annual_savings = savings
                project.save(update_fields=["actual_annual_savings"])
            updated += 1

        verb = "Would update" if options["dry_run"] else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{verb} {updated} projects"))
