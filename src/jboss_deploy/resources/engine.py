"""Add-resource engine - orchestrates compose, hooks and submission.

Each top-level resource becomes one atomic batch per profile (domain mode)
or one batch (standalone). Batches are independent: when one fails the run
stops, and batches already committed stay committed.
"""
import logging
from typing import Any, Optional, Sequence

from ..exceptions import ConfigurationError, JBossDeployError, NoProfilesConfigured
from ..management.operations import raise_on_failure
from ..utils.logging_config import timed_section_sync
from .composer import ResourceComposer
from .hooks import execute_commands
from .schema import AddResourceResult, BatchOutcome, Resource

logger = logging.getLogger(__name__)


class AddResourceEngine:
    """
    Adds resource trees to a server.

    Usage:
        engine = AddResourceEngine(client)
        result = engine.add(resources, force=True)
    """

    def __init__(self, client: Any):
        self.client = client
        self.composer = ResourceComposer(client)
        # Report of the most recent run, also kept when it raised
        self.last_result: Optional[AddResourceResult] = None

    def add(
        self,
        resources: Sequence[Resource],
        base_address: Optional[str] = None,
        profiles: Optional[Sequence[str]] = None,
        force: bool = True,
        dry_run: bool = False,
    ) -> AddResourceResult:
        """
        Add each resource, in declaration order.

        Args:
            resources: Top-level resources
            base_address: Address combined with every top-level resource's own
            profiles: Domain profiles (required on a domain controller)
            force: Replace resources that already exist
            dry_run: Compose and report the steps without submitting anything

        Returns:
            AddResourceResult with one entry per batch

        Raises:
            NoProfilesConfigured: On a domain controller without profiles
            ResourceAlreadyExists: If a resource exists and force is off
            OperationFailed: If a batch or hook fails
        """
        result = AddResourceResult(dry_run=dry_run)
        self.last_result = result

        if not resources:
            logger.warning("No resources were provided.")
            return result

        targets: list[Optional[str]] = [None]
        if self.client.is_domain:
            targets = self._domain_profiles(profiles)

        for resource in resources:
            for profile in targets:
                self._add_one(resource, base_address, profile, force, dry_run, result)

        logger.info(
            f"Add resource finished: {len(result.committed)} committed, "
            f"{len(result.skipped)} skipped"
        )
        return result

    def _domain_profiles(self, profiles: Optional[Sequence[str]]) -> list[Optional[str]]:
        if not profiles:
            raise NoProfilesConfigured()

        known = set(self.client.read_profile_names())
        unknown = [p for p in profiles if p not in known]
        if unknown:
            raise ConfigurationError(
                f"Unknown profiles: {', '.join(unknown)}. Available: {', '.join(sorted(known))}"
            )
        return list(profiles)

    def _add_one(
        self,
        resource: Resource,
        base_address: Optional[str],
        profile: Optional[str],
        force: bool,
        dry_run: bool,
        result: AddResourceResult,
    ) -> None:
        label = resource.address or base_address or ""
        outcome = BatchOutcome(address=label, profile=profile)
        result.batches.append(outcome)

        try:
            composed = self.composer.compose(resource, base_address, profile=profile, force=force)
            outcome.address = str(composed.address)

            if composed.nothing_to_do:
                outcome.status = "skipped"
                self._report(outcome)
                return

            outcome.steps = composed.composite.steps
            if dry_run:
                outcome.status = "planned"
                self._report(outcome)
                return

            with timed_section_sync(
                "add_resource", self.client.endpoint, address=outcome.address, profile=profile
            ):
                execute_commands(resource.before_add, self.client)
                raise_on_failure(self.client.execute(composed.composite.build()))
                outcome.status = "committed"
                execute_commands(resource.after_add, self.client)
        except JBossDeployError as e:
            outcome.error = str(getattr(e, "description", None) or e)
            if outcome.status != "committed":
                outcome.status = "failed"
            self._report(outcome)
            if result.committed:
                logger.warning(
                    f"{len(result.committed)} batches were already committed and are not rolled back"
                )
            raise

        self._report(outcome)

    @staticmethod
    def _report(outcome: BatchOutcome) -> None:
        where = f" in profile {outcome.profile}" if outcome.profile else ""
        if outcome.error:
            logger.error(f"Resource {outcome.address}{where}: failed: {outcome.error}")
        else:
            logger.info(
                f"Resource {outcome.address}{where}: {outcome.status} ({len(outcome.steps)} steps)"
            )
