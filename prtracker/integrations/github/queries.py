AUTO_MERGE_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $number) {
      autoMergeRequest {
        enabledAt
        enabledBy {
          login
        }
        mergeMethod
      }
    }
  }
}
"""
