"""AWS Lambda handler for artwork generation - one batch per queue message."""

import json
import logging

from ..api.serializers import parse_batch_job
from ..clients.dynamo import DynamoStore
from ..clients.storage import StorageClient
from ..config import ARTGEN_BUCKET, ARTGEN_TABLE, AWS_REGION, BATCH_SIZE, LOG_LEVEL
from ..engine import ArtworkEngine, BatchRangeError
from ..models import BatchJob, ImageComposite

logger = logging.getLogger(__name__)
logging.getLogger("artgen").setLevel(LOG_LEVEL)


def summarize(job: BatchJob, composites: list[ImageComposite | None]) -> dict:
    """Build the response body for a finished batch."""
    produced = {c.item_index: c for c in composites if c}
    abandoned = [i for i in range(job.start_index, job.end_index) if i not in produced]
    return {
        "compositeGroupId": job.run.composite_group_id,
        "traitSetId": job.run.trait_set_id,
        "startIndex": job.start_index,
        "endIndex": job.end_index,
        "generated": len(produced),
        "abandoned": abandoned,
        "composites": [
            {
                "itemIndex": c.item_index,
                "traitsHash": c.traits_hash,
                "externalURL": c.external_url,
            }
            for c in produced.values()
        ],
    }


def run_batch(engine: ArtworkEngine, job: BatchJob) -> dict:
    """Run one batch and build the HTTP-style response."""
    composites = engine.generate(job)
    body = summarize(job, composites)

    # Under-production is reported, not an error: the caller decides whether to re-run
    status_code = 200 if not body["abandoned"] else 207

    return {
        "statusCode": status_code,
        "body": json.dumps(body),
    }


def build_engine() -> ArtworkEngine:
    return ArtworkEngine(
        store=DynamoStore(ARTGEN_TABLE, region_name=AWS_REGION),
        storage=StorageClient(ARTGEN_BUCKET, region_name=AWS_REGION),
    )


def load_job(raw_body: str) -> BatchJob:
    """Parse a batch message body. Raises KeyError/ValueError on malformed input."""
    return parse_batch_job(json.loads(raw_body))


def execute(job: BatchJob, engine: ArtworkEngine | None = None) -> dict:
    """Run a parsed batch, mapping failures to an HTTP-style response."""
    try:
        engine = engine or build_engine()
        return run_batch(engine, job)

    except BatchRangeError as e:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": str(e)}),
        }

    except Exception as e:
        logger.exception(f"Batch {job.start_index} - {job.end_index} failed: {e}")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(e)}),
        }


def handle_records(records: list[dict]) -> dict:
    """
    Run every batch of an SQS delivery, in order.

    Records whose batch failed are reported in `batchItemFailures` so only
    they return to the queue (the event source mapping must enable
    ReportBatchItemFailures). Abandoned items are not a failure.
    """
    failures = []
    engine = None

    for record in records:
        message_id = record["messageId"]
        try:
            job = load_job(record["body"])
        except (KeyError, ValueError) as e:
            logger.error(f"Invalid batch in message {message_id}: {e}")
            failures.append({"itemIdentifier": message_id})
            continue

        if engine is None:
            engine = build_engine()

        response = execute(job, engine)
        if response["statusCode"] >= 400:
            logger.error(f"Message {message_id} failed with status {response['statusCode']}")
            failures.append({"itemIdentifier": message_id})

    logger.info(f"Processed {len(records)} batch messages, {len(failures)} failed")
    return {"batchItemFailures": failures}


def handler(event, context):
    """
    AWS Lambda handler - triggered by SQS or HTTP.

    Input payload (one batch, as queued by the enqueue handler):
    {
        "projectId": "p1",
        "collectionId": "c1",
        "compositeGroupId": "g1",
        "traitSetId": "-1",
        "startIndex": 0,
        "endIndex": 50,
        "isFirstBatchInTraitSet": true
    }

    An SQS delivery may carry several such messages; each is one batch.
    """
    # Handle SQS event format
    if "Records" in event:
        return handle_records(event["Records"])

    try:
        job = load_job(event.get("body") or "{}")
    except (KeyError, ValueError) as e:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": f"Invalid batch: {e}"}),
        }

    return execute(job)


# Local testing
if __name__ == "__main__":
    import sys

    from ..clients.memory import MemoryStore
    from ..clients.storage import LocalStorage
    from ..models import GenerationRun
    from ..services.scheduler import plan_batches

    if len(sys.argv) < 3:
        print("Usage: python -m artgen.handlers.worker <catalog.json> <assets_dir> [composite_group_id] [batch_size]")
        print()
        print("Arguments:")
        print("  catalog.json       - Collection catalog (collection, traits, traitValues, imageLayers, conflicts)")
        print("  assets_dir         - Directory standing in for the bucket; layers under <project>/<collection>/")
        print("  composite_group_id - Run identifier (default: local)")
        print(f"  batch_size         - Items per batch (default: {BATCH_SIZE})")
        print()
        print("Example:")
        print("  python -m artgen.handlers.worker catalog.json ./bucket local 25")
        sys.exit(1)

    logging.basicConfig(level=LOG_LEVEL)

    project_id = "local"
    store = MemoryStore.from_json_file(project_id, sys.argv[1])
    storage = LocalStorage(sys.argv[2])
    collection_id = next(iter(store.catalogs.values())).collection.id
    run = GenerationRun(
        project_id=project_id,
        collection_id=collection_id,
        composite_group_id=sys.argv[3] if len(sys.argv) > 3 else "local",
    )
    batch_size = int(sys.argv[4]) if len(sys.argv) > 4 else BATCH_SIZE

    engine = ArtworkEngine(store=store, storage=storage)
    collection = store.get_collection(project_id, collection_id)
    jobs = plan_batches(run, collection.supply, batch_size, store.trait_sets(project_id, collection_id))

    for job in jobs:
        result = run_batch(engine, job)
        body = json.loads(result["body"])
        print(f"[{job.start_index}-{job.end_index}] status={result['statusCode']} generated={body['generated']} abandoned={len(body['abandoned'])}")

    print("\nResult:")
    for composite in store.composites(run):
        values = ", ".join(f"{p.trait.name}={p.trait_value.name if p.trait_value else '-'}" for p in composite.traits)
        print(f"  #{composite.item_index} {values} -> {composite.external_url}")
