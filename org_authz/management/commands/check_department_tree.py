"""
检查部门树完整性
"""

from django.core.management.base import BaseCommand, CommandError

from ...conf import authz_settings
from ...models import Department, Organization
from ...services import DepartmentHierarchy
from ...services.resolvers import coerce_uuid


class Command(BaseCommand):
    help = 'Check stored department trees for self-references, cycles and cross-organization parents'

    def add_arguments(self, parser):
        parser.add_argument(
            '--organization',
            dest='organization_id',
            default=None,
            help='Only check departments of this organization'
        )

    def handle(self, *args, **options):
        """执行部门树检查"""
        organization_id = options.get('organization_id')
        if organization_id:
            raw_value = organization_id
            organization_id = coerce_uuid(raw_value)
            if organization_id is None:
                raise CommandError(f"Invalid organization id: {raw_value}")
        if organization_id and not Organization.objects.filter(id=organization_id).exists():
            raise CommandError(f"Organization not found: {organization_id}")

        self.stdout.write("🔍 Checking department trees...")
        self.stdout.write(f"  📏 Max depth: {authz_settings.MAX_DEPARTMENT_DEPTH}")

        queryset = Department.objects.all()
        if organization_id:
            queryset = queryset.filter(organization_id=organization_id)
        self.stdout.write(f"  📊 Departments: {queryset.count()}")

        problems = DepartmentHierarchy().find_cycles(organization_id=organization_id)
        if not problems:
            self.stdout.write(self.style.SUCCESS('✅ Department trees are valid'))
            return

        for problem in problems:
            self.stdout.write(f"  ❌ {problem['department_id']}: {problem['problem']}")
        raise CommandError(f"Found {len(problems)} invalid department(s)")
