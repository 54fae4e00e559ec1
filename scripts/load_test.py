import asyncio
import httpx
import time
import os
import statistics
from collections import Counter

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
TOTAL_WORKFLOWS = int(os.getenv("TOTAL_WORKFLOWS", "50"))
NODES_PER_WORKFLOW = int(os.getenv("NODES_PER_WORKFLOW", "10"))
CONCURRENCY = int(os.getenv("CONCURRENCY", "50"))


async def build_workflow(client: httpx.AsyncClient, i: int, semaphore: asyncio.Semaphore):
    """Creates a workflow, then races NODES_PER_WORKFLOW node additions and a chain of connections at it."""
    async with semaphore:
        try:
            start = time.time()
            resp = await client.post("/api/v1/workflows", json={"name": f"Load Test {i}"})
            resp.raise_for_status()
            workflow_id = resp.json()["workflow"]["id"]
            base = f"/api/v1/workflows/{workflow_id}"

            node_ids = [f"step{n}" for n in range(NODES_PER_WORKFLOW)]
            responses = await asyncio.gather(
                *(client.post(f"{base}/nodes", json={"id": node_id, "type": "set"}) for node_id in node_ids)
            )
            for r in responses:
                r.raise_for_status()

            for source, target in zip(node_ids, node_ids[1:]):
                resp = await client.post(
                    f"{base}/connections",
                    json={"sourceNodeId": source, "targetNodeId": target},
                )
                resp.raise_for_status()

            resp = await client.post(f"{base}/activate")
            resp.raise_for_status()

            # Lost updates would show up as missing nodes or a short version counter
            workflow = (await client.get(base)).json()
            expected_version = 1 + NODES_PER_WORKFLOW + (NODES_PER_WORKFLOW - 1) + 1
            if len(workflow["nodes"]) != NODES_PER_WORKFLOW or workflow["version"] != expected_version:
                return "LOST_UPDATE", time.time() - start
            return "COMPLETED", time.time() - start

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                return "CONFLICT", 0
            if e.response.status_code == 503:
                return "BACKEND_UNAVAILABLE", 0
            return f"HTTP_ERROR_{e.response.status_code}", 0
        except Exception as e:
            return f"EXCEPTION_{type(e).__name__}", 0


async def main():
    print(f"Workflow Graph Service: Concurrent Edit Load Test")
    print(f"Target:      {BASE_URL}")
    print(f"Workflows:   {TOTAL_WORKFLOWS}")
    print(f"Nodes each:  {NODES_PER_WORKFLOW}")
    print(f"Concurrency: {CONCURRENCY}")

    semaphore = asyncio.Semaphore(CONCURRENCY)

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=30.0) as client:
        start_time = time.time()
        tasks = [build_workflow(client, i, semaphore) for i in range(TOTAL_WORKFLOWS)]
        results = await asyncio.gather(*tasks)
        total_time = time.time() - start_time

        statuses = [r[0] for r in results]
        durations = [r[1] for r in results if r[0] == "COMPLETED"]
        counter = Counter(statuses)
        commands = TOTAL_WORKFLOWS * (2 * NODES_PER_WORKFLOW + 1)

        print("\n" + "="*40)
        print("  LOAD TEST SUMMARY")
        print("="*40)
        print(f"Total Time:     {total_time:.2f}s")
        print(f"Throughput:     {commands / total_time:.2f} commands/sec")
        print("-" * 40)

        for status, count in counter.items():
            color = "\033[0;32m" if status == "COMPLETED" else "\033[0;31m"
            print(f"{color}{status:20}\033[0m: {count}")

        if durations:
            print("-" * 40)
            print(f"Latency P50:    {statistics.median(durations):.3f}s")
            if len(durations) >= 2:
                print(f"Latency P95:    {statistics.quantiles(durations, n=20)[18]:.3f}s")
            print(f"Avg Duration:   {sum(durations)/len(durations):.3f}s")
        print("="*40)

if __name__ == "__main__":
    asyncio.run(main())
